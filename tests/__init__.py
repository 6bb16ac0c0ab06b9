"""Unit tests for FluentTab.

This package contains test modules for all components of the FluentTab background service.
Tests use pytest with asyncio support and mock HTTP/network calls via AsyncMock.
"""
