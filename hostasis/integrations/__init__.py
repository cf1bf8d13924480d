"""hostasis.integrations

Read-only clients for the two external services: the Gnosis Chain RPC
(batch depth) and the Swarm gateway (feed index).
"""
