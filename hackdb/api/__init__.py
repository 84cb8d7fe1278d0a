from hackdb.api.accounts import router as accounts_router
from hackdb.api.hacks import router as hacks_router
from hackdb.api.pages import router as pages_router

__all__ = ["accounts_router", "hacks_router", "pages_router"]
