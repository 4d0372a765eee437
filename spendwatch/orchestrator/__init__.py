"""Detection orchestration, audit runner and retry handling"""
