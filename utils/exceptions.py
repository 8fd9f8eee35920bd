class AppError(Exception):
    """Base class for all application-specific errors."""
    pass

class ValidationError(AppError):
    """Raised for input or data validation errors."""
    pass

class DatabaseError(AppError):
    """Raised for database connection or query errors."""
    pass

class CatalogError(AppError):
    """Raised when static catalog data is missing or malformed."""
    pass

class EncounterGenerationError(AppError):
    """Base class for failures reported by an encounter category generator."""
    pass

class NoFitError(EncounterGenerationError):
    """Raised when no challenge rating fits the available XP budget."""
    pass

class CatalogEmptyError(EncounterGenerationError):
    """Raised when a resolved challenge rating has no matching creatures."""
    pass

class InsufficientRosterError(EncounterGenerationError):
    """Raised when Mounts and Riders cannot assemble at least two creatures."""
    pass

class UnknownCategoryError(EncounterGenerationError):
    """Raised when an encounter category tag is not recognized."""
    pass
