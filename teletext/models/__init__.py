"""
Pydantic models for pages, sessions and request validation
"""
from teletext.models.page import *
from teletext.models.requests import *
from teletext.models.sessions import *
