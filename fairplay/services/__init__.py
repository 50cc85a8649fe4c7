# fairplay/services/__init__.py
"""
Scan-and-patch services.

- pattern_scan: progressive-fallback detection, response sanitizing and decoding
- pattern_fix: fix generation and the apply/revert lifecycle
- resilience: page epoch and the serial document channel
"""
