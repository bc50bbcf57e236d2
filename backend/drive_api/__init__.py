"""
Service layer for the Yango Drive scraper: settings, logging, the HTTP
control API, the daily scheduler, spreadsheet export and email delivery.
"""
