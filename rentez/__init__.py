# rentez/__init__.py
