"""aiohttp web service exposing UAID resolution."""
