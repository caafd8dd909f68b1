"""Authorization, authentication and validation collaborators of the services."""

from .ability import Ability, Rule
from .authentication import Authenticator, AuthStrategy, bearer_token_strategy
from .authorization import Authorization
from .validator import ValidationResult, Validator

__all__ = [
    "Ability",
    "AuthStrategy",
    "Authenticator",
    "Authorization",
    "Rule",
    "ValidationResult",
    "Validator",
    "bearer_token_strategy",
]
