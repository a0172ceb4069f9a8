"""Engine modules.

- plans: plan catalog models and builder
- billing: quote calculator, billing exceptions, quote notifications
- quota: module quota evaluator and listing lifecycle
- subscriptions: subscription orchestration over repository collaborators
"""
