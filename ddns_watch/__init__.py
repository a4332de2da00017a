"""Cloudflare IPv4 DDNS sync with a daily change report."""
