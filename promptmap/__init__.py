"""Convert prompt documents between Markdown and editable trees."""
