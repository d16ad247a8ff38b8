"""Import-direction and coding-convention checks for the coordinator package."""
