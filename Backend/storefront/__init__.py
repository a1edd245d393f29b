"""Storefront API: catalog browsing and staff CMS for products and categories."""
