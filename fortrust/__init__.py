"""Browser engine building blocks: HTML DOM, framed IPC messaging, script event loop, HTTP cache, DoH settings and HTTPS fetching."""

__version__ = "0.1.0"