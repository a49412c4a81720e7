"""Command line tool for upgrading images and actions."""
