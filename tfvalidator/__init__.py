"""terraform-validator: validate Terraform plans against policy constraints."""

__version__ = "0.1.0"
