"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "domain_error"


class NotFoundError(DomainException):
    """Referenced entity does not exist"""

    code = "not_found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTermsError(DomainException):
    """Debt terms are malformed (negative rate, non-positive minimum, bad due day)"""

    code = "invalid_terms"


class ValidationError(DomainException):
    """Request data is malformed"""

    code = "validation_error"


class ConflictError(DomainException):
    """A concurrent write on the same entity won the race"""

    code = "conflict"
