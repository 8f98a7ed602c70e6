"""Hand-written mappings for fields whose names differ."""

from app.domain import Address, User
from app.handler import AddressRequest, UserRequest


def convert_user_request__name_to_user__name(src: UserRequest, dst: User) -> None:
    dst.name = src.full_name


def convert_address_request__city_to_address__city(src: AddressRequest, dst: Address) -> None:
    dst.city = src.req_city
