"""Domain models."""

from dataclasses import dataclass


@dataclass
class Address:
    city: str
    zip_code: str


@dataclass
class User:
    name: str
    email: str
    age: int
    address: Address
