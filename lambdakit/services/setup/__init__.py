"""Setup (provisioning) services.

Orchestration that provisions what a new project needs: the env var bucket, the
local project tree and the per-stage CloudFormation stack.
"""
