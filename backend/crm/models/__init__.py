from .contacts import Customer, Broker
from .projects import Project, MasterProject, CommissionPayment
from .receipts import Receipt
from .interactions import Interaction
from .inventory import InventoryItem
from .settings import Setting

__all__ = [
    'Customer', 'Broker',
    'Project', 'MasterProject', 'CommissionPayment',
    'Receipt',
    'Interaction',
    'InventoryItem',
    'Setting',
]
