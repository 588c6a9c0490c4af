"""Record types shared by the test suite."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict

from pydantic import BaseModel, ConfigDict, Field

from query_algebra import GeoPoint


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str
    city: str
    zip_code: str | None = None


class Pet(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    age: int


class Person(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    age: int
    score: int = 0
    rating: float = 0.0
    middle_name: str | None = None
    email: str | None = None
    bio: str = ""
    address: Address | None = None
    tags: list[str] = Field(default_factory=list)
    scores: list[int] = Field(default_factory=list)
    pets: list[Pet] = Field(default_factory=list)
    labels: set[str] = Field(default_factory=set)
    attributes: dict[str, int] = Field(default_factory=dict)
    flags: int = 0
    location: GeoPoint | None = None


@dataclass(frozen=True)
class Item:
    sku: str
    quantity: int
    price: float
    tags: tuple[str, ...] = ()


class Preferences(TypedDict):
    theme: str
    volume: int


ATHENS = GeoPoint(latitude=37.9838, longitude=23.7275)
THESSALONIKI = GeoPoint(latitude=40.6401, longitude=22.9444)
PIRAEUS = GeoPoint(latitude=37.9420, longitude=23.6465)
