"""Hydra callbacks for multirun post-processing."""
