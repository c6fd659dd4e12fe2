"""Custom exceptions for the Stockroom credential service"""


class StockroomError(Exception):
    """Base exception for Stockroom"""
    pass


class ConfigError(StockroomError):
    """Configuration error"""
    pass


class StorageError(StockroomError):
    """User file could not be read, parsed, locked or written"""
    pass


class UserAlreadyExistsError(StockroomError):
    """Registration attempted for an email that is already registered"""

    def __init__(self, email: str):
        self.email = email
        super().__init__("User already exists")
