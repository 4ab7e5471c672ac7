# inventory_tracker/api/__init__.py
# Routers are included in main.py with the API prefix
