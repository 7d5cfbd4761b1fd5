"""Business domains, each split into repository, schemas, service and router modules"""
