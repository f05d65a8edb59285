"""Domain services: teams, records, payments, content and export."""
