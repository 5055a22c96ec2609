"""KaaS: provisions applications and managed databases on Kubernetes."""
