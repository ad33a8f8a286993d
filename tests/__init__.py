"""Unit tests for the Google Translate web client.

Tests use pytest with asyncio support; HTTP is replaced by fake transports injected
through constructors or monkeypatch, so no test touches the network except the
transport tests, which run against a local aiohttp test server.
"""
