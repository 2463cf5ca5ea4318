"""
Infrastructure adapters.

This package contains:
- PostgrestCatalogStore: CatalogStore over the hosted store's REST interface
- SupabaseAuthProvider / AnonymousAuthProvider: AuthProvider adapters
- LoggingNotificationSink / RecordingNotificationSink: NotificationSink adapters
"""
