"""Detection tools and report helpers"""
