"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ExchangeRateError(DomainException):
    """Exchange rates could not be obtained"""

    pass


class ExchangeRateAPIError(ExchangeRateError):
    """Rate service returned an error or is unreachable"""

    pass


class ExchangeRateTimeoutError(ExchangeRateError):
    """Rate service did not answer within the request timeout"""

    pass


class InvalidExchangeRatePayloadError(ExchangeRateError):
    """Rate payload is malformed or lacks a usable JPY rate"""

    pass
