# app/schemas/__init__.py
