"""Plateforme e-commerce multi-boutiques: checkout Stripe Connect, registre des commandes, inventaire."""
