"""
API route modules for the restaurant ordering platform.

This package contains subrouters for:
- Auth: register, login, refresh, logout, password reset, current user
- Restaurants: restaurant settings and share links
- Menu: categories, menu items and their ingredients
- Tables: tables, shifts and staff table assignments
- Orders: staff order management, dashboard summary and receipts
- Public: customer-facing menu, ordering and order tracking by slug
- Staff: invitations, members and staff notifications
- Inventory: suppliers, stock items and waste log
- Procurement: purchase orders and receiving
- Reports: CSV/Excel/PDF exports
- QR: table and menu QR codes
- Storage: file uploads and public file serving
- Admin: platform administration for super admins

Routers are included from tableside.api.main (under the /api/v1 prefix).
"""
