# fairplay/cli/__init__.py
