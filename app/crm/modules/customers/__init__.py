"""
Customers module.

- Customers CRUD (list + register + detail + partial update + delete)
- Profile images in the customer bucket (key not persisted on the row yet)
"""
