from __future__ import annotations


# Request-layer failures
NETWORK_ERROR = "Network error. Please check your connection and try again."
TIMEOUT_ERROR = "Request timeout. Please try again."
MALFORMED_RESPONSE = "Invalid JSON response from server"
UNEXPECTED_ERROR = "An unexpected error occurred. Please try again."

# Auth flows
LOGIN_SUCCESS = "Login successful! Welcome back."
LOGIN_FAILED = "Login failed. Please check your credentials."
LOGOUT_SUCCESS = "Logout successful!"
REGISTRATION_SUCCESS = "Registration successful! You can now login with your account."
REGISTRATION_FAILED = "Registration failed. Please try again."
NOT_ALLOWED = (
    "Your account is not allowed to access this system. Please contact an administrator."
)

# Form validation
EMAIL_REQUIRED = "Email is required"
EMAIL_INVALID = "Please enter a valid email address"
EMAIL_TOO_SHORT = "Email must be at least 5 characters"
EMAIL_TOO_LONG = "Email must be less than 254 characters"

PASSWORD_REQUIRED = "Password is required"
PASSWORD_TOO_SHORT = "Password must be at least 6 characters"
PASSWORD_TOO_LONG = "Password must be less than 128 characters"
PASSWORD_WEAK = (
    "Password must contain at least one uppercase letter, one lowercase letter, and one number"
)

CONFIRM_PASSWORD_REQUIRED = "Please confirm your password"
CONFIRM_PASSWORD_MISMATCH = "Passwords do not match"

DOI_REQUIRED = "Please enter a DOI."
PMID_NOT_NUMERIC = "PMID must be numeric if provided."
