"""Package setup for pd-onboard."""

from setuptools import setup

setup(
    name="pd-onboard",
    version="0.3.0",
    description="PagerDuty directory aggregation and service onboarding progress tracking",
    packages=["pd_onboard"],
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.24.0",
        "pydantic>=2.0.0",
        "openpyxl>=3.1.0",
        "pyyaml>=6.0",
        "click>=8.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            "pd-onboard=pd_onboard.cli:main",
        ],
    },
)
