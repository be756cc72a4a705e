"""Consumer layer: resolution of games to stream URLs.

Main entry point:
    from streamarr.consumers.resolver import StreamResolver

    resolver = StreamResolver(store, registry)
    result = resolver.resolve(game)
"""
