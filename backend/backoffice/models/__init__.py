from .stock import StockRecord, StockAlert
from .registers import CashRegisterClosing
from .alerts import StockCashAlert, Alert

__all__ = [
    'StockRecord', 'StockAlert',
    'CashRegisterClosing',
    'StockCashAlert', 'Alert',
]
