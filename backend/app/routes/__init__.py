# Routes package init
"""
JunkHub Backend — API Routes Package
======================================

Route Inventory:
    - auth.py:           /api/auth          (register, login, logout, me, password reset)
    - users.py:          /api/users         (profile, wishlist, orders, reviews)
    - shops.py:          /api/shops         (browse shops, owner shop management)
    - products.py:       /api/products      (catalog, home page lists, owner listings)
    - orders.py:         /api/orders        (checkout, cancel, status, confirm receipt)
    - offers.py:         /api/offers        (sell offers and owner responses)
    - owner.py:          /api/owner         (owner dashboard and profile)
    - admin.py:          /api/admin         (accounts, moderation, stats)
    - chats.py:          /api/chats, /api/owner/chats
    - notifications.py:  /api/notifications, /api/owner/notifications,
                         /api/admin/notifications
    - health.py:         /health

Routes stay thin: parse the request, check the role gate, call a service,
wrap the result in its response envelope.
"""
