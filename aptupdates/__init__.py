"""APT Updates Check — pending, phased and security updates for monitoring agents."""

__version__ = "1.0.0"
