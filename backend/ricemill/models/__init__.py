from .dealers import Dealer
from .auth import User, SessionToken
from .inventory import Godown, PaddyIntake, RiceStock
from .orders import DealerOrder
from .billing import Sale, Invoice, Payment, IdentifierSequence

__all__ = [
    'Dealer',
    'User', 'SessionToken',
    'Godown', 'PaddyIntake', 'RiceStock',
    'DealerOrder',
    'Sale', 'Invoice', 'Payment', 'IdentifierSequence',
]
