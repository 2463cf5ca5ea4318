from .supabase_auth import AnonymousAuthProvider, SupabaseAuthProvider

__all__ = ["AnonymousAuthProvider", "SupabaseAuthProvider"]
