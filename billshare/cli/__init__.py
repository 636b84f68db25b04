"""Unified command-line interface for billshare.

Usage:
    billshare serve [--host] [--port]
    billshare scan <image>
    billshare calc <keys...>
    billshare split
"""
