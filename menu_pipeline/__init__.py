"""
menu_pipeline — Dietary menu pipeline.

Finds well-rated independent restaurants through Google Places, locates and
extracts their menus, and labels each dish vegan / vegetarian / gluten-free
with an AI provider chain. Results land in Supabase.

Entry point: python main.py (see menu_pipeline.run).
"""
