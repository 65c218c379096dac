from contacts_api.routes import contacts, users

__all__ = ["contacts", "users"]
