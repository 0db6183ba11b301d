"""fluxstack — REST backend: e-mail auth, posts, dashboard."""
