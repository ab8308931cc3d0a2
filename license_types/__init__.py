"""
License types module - License plans catalog.

A license type fixes the validity period and device ceiling given to
licenses issued under it.
"""
