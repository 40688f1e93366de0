# Routes package init
"""
Notely Backend - API Routes Package
====================================

Route Inventory:
    - notes.py:   GET/POST       /api/notes
                  GET/PUT/DELETE /api/notes/{id}
    - health.py:  GET            /          (liveness ping)
                  GET            /health    (dependency status)

Routes stay thin: extract request data, call the service, shape the
response. Business rules live in services.
"""
