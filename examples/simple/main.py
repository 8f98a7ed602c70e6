#!/usr/bin/env python3
"""
Basic usage example for convgen.

Generates ``app/converter/generated.py`` from the registration in
``app/converter/register.py`` and converts a handler request into a
domain model with it.
"""

import importlib
from pathlib import Path

from convgen import ConverterGenerator
from app.handler import AddressRequest, UserRequest

CONVERTER_DIR = Path(__file__).parent / "app" / "converter"


def main():
    """Generate the converter module and use it."""
    print("convgen - Basic Usage Example")
    print("=" * 40)

    result = ConverterGenerator().run(CONVERTER_DIR)
    print(f"Generated: {result.output_path}")
    print(f"Functions: {', '.join(result.functions)}")

    generated = importlib.import_module("app.converter.generated")

    req = UserRequest(
        full_name="Takuma Shibuya",
        email="takuma@example.com",
        age=30,
        address=AddressRequest(req_city="Tokyo", zip_code="100-0001"),
    )
    user = generated.User.__new__(generated.User)
    generated.convert_user_request_to_user(req, user)

    print(f"Name:    {user.name}")
    print(f"Email:   {user.email}")
    print(f"Age:     {user.age}")
    print(f"City:    {user.address.city}")
    print(f"ZipCode: {user.address.zip_code}")


if __name__ == "__main__":
    main()
