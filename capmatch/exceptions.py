"""Exceptions du moteur de correspondance (hiérarchie structurée).

Deux familles : ValidationException pour une entrée invalide fournie par
l'appelant, ScoringFaultException pour une panne interne de calcul.
"""
from typing import Any, Dict, Optional


class MatcherException(Exception):
    """Classe de base de toutes les exceptions du moteur."""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# Entrées invalides
class ValidationException(MatcherException):
    """Entrée invalide fournie par l'appelant."""

    def __init__(
        self,
        field: str,
        reason: str,
        error_code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"Validation failed for '{field}': {reason}"
        super().__init__(message, error_code, details or {"field": field, "reason": reason})


class InvalidParameterException(ValidationException):
    """Paramètre de classement invalide (max_results négatif, min_score NaN...)."""

    def __init__(self, parameter: str, value: Any, reason: str):
        super().__init__(
            parameter,
            reason,
            "INVALID_PARAMETER",
            {"parameter": parameter, "value": repr(value), "reason": reason},
        )


class InvalidQueryException(ValidationException):
    """Requête qui ne respecte pas le modèle Query."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("query", reason, "INVALID_QUERY", details)


class DescriptorValidationException(ValidationException):
    """Entrée du catalogue qui ne peut pas devenir un Descriptor."""

    def __init__(self, reason: str, position: Optional[int] = None):
        super().__init__(
            "descriptor",
            reason,
            "INVALID_DESCRIPTOR",
            {"position": position, "reason": reason},
        )


# Panne interne
class ScoringFaultException(MatcherException):
    """Échec inattendu pendant le calcul du score d'un descripteur."""

    def __init__(self, descriptor_name: Any, cause: BaseException):
        message = f"Scoring failed for descriptor {descriptor_name!r}: {cause}"
        super().__init__(
            message,
            "SCORING_FAULT",
            {"descriptor": repr(descriptor_name), "cause": type(cause).__name__},
        )
