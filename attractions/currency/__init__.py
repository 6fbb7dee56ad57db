from .service import CurrencyService, RoundingPolicy, round_currency

__all__ = ["CurrencyService", "RoundingPolicy", "round_currency"]
