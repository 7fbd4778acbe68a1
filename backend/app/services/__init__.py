"""Application services: article lifecycle, review ledger and cover storage."""
