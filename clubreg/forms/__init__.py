from .registration import CheckoutRegistrationForm, DonationForm, RegistrationForm, load_form

__all__ = ['CheckoutRegistrationForm', 'DonationForm', 'RegistrationForm', 'load_form']
