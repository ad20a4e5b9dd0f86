from groupsplit.handlers.basic import basic_router
from groupsplit.handlers.expenses import expenses_router
from groupsplit.handlers.groups import groups_router
from groupsplit.handlers.payments import payments_router

__all__ = ["basic_router", "expenses_router", "groups_router", "payments_router"]
