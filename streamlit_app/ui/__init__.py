"""
UI components for the Resep Nusantara Streamlit app.

This package contains:
- feedback: error, empty and loading states
- layout: page header, navigation bar, recipe cards
- views: renderers for list, detail, form and profile views
"""
