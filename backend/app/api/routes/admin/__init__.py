"""Administrative console API routes."""
