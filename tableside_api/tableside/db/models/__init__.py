"""
ORM models for restaurants, menus, orders, staff, inventory and procurement.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .security import (  # noqa: F401
    AppRole,
    User,
    UserRole,
)
from .restaurants import (  # noqa: F401
    Restaurant,
    RestaurantStaff,
    StaffInvitation,
    RestaurantTable,
    Shift,
    StaffTableAssignment,
    StaffNotification,
)
from .menu import (  # noqa: F401
    Category,
    MenuItem,
    MenuItemIngredient,
)
from .orders import (  # noqa: F401
    Order,
    OrderItem,
)
from .inventory import (  # noqa: F401
    Supplier,
    InventoryItem,
    WasteLogEntry,
)
from .procurement import (  # noqa: F401
    PurchaseOrder,
    PurchaseOrderItem,
)
