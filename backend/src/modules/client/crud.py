"""CRUD operations for client entities using FastCRUD."""

from fastcrud import FastCRUD

from .models import Client

client_crud: FastCRUD = FastCRUD(Client)
