"""
Dependency injection for routes.

Components are assembled once in create_app() and kept on app.state.
"""

from fastapi import Request

from src.admin import Mailbox, UserDirectory
from src.imports import CsvTransactionImporter
from src.ledgers import LedgerStore
from src.orchestrator import AppComponents


def get_components(request: Request) -> AppComponents:
    return request.app.state.components


def get_store(request: Request) -> LedgerStore:
    return get_components(request).store


def get_importer(request: Request) -> CsvTransactionImporter:
    return get_components(request).importer


def get_user_directory(request: Request) -> UserDirectory:
    return get_components(request).users


def get_mailbox(request: Request) -> Mailbox:
    return get_components(request).mailbox
