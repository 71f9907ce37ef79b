"""CRUD operations for analysis entities using FastCRUD."""

from fastcrud import FastCRUD

from .models import Analysis

analysis_crud: FastCRUD = FastCRUD(Analysis)
