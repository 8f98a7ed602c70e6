"""HTTP handler request types."""

from dataclasses import dataclass


@dataclass
class AddressRequest:
    req_city: str
    zip_code: str


@dataclass
class UserRequest:
    full_name: str
    email: str
    age: int
    address: AddressRequest
