"""
Conversion between Notion rich text / blocks and Markdown.
"""
