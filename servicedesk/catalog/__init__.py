"""Reference data managed by administrators: clients, categories and groups."""

from .keys import cnpj_digits, slugify
from .models import Category, Client, Group
from .repository import CategoryRepository, ClientRepository, GroupRepository
from .service import CategoryService, ClientService, GroupService, ReferenceDataService

__all__ = [
    "Category",
    "CategoryRepository",
    "CategoryService",
    "Client",
    "ClientRepository",
    "ClientService",
    "Group",
    "GroupRepository",
    "GroupService",
    "ReferenceDataService",
    "cnpj_digits",
    "slugify",
]
