# API v1 routers

from . import (
    auth,
    providers,
    services,
    bookings,
    customers,
    notifications,
    support,
    admin
)

# (router, path under the v1 prefix, OpenAPI tag)
ROUTES = (
    (auth.router, "/auth", "Authentication"),
    (providers.router, "/providers", "Service Providers"),
    (services.router, "/services", "Services"),
    (bookings.router, "/bookings", "Bookings"),
    (customers.router, "/customer", "Customer"),
    (notifications.router, "/notifications", "Notifications"),
    (support.router, "/support", "Support"),
    (admin.router, "/admin", "Admin"),
)

__all__ = [
    "ROUTES",
    "auth",
    "providers",
    "services",
    "bookings",
    "customers",
    "notifications",
    "support",
    "admin",
]
