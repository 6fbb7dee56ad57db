from .service import BalanceService, BalanceCheck, WalletBalance

__all__ = ["BalanceService", "BalanceCheck", "WalletBalance"]
