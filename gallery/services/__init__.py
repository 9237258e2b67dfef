"""Gallery services - domain logic behind the HTTP routers"""
