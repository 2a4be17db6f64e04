"""Install cache-backed cookie sessions for Flask."""

from setuptools import setup, find_packages

setup(
    name='cache-sessions',
    version='0.1.0',
    packages=find_packages(exclude=['*test*', 'example', 'example.*']),
    python_requires='>=3.8',
    install_requires=[
        "flask>=2.3",
        "werkzeug>=2.3",
        "redis>=4.1",
        "pytz",
        "python-json-logger>=2.0.2",
    ],
    extras_require={
        "test": [
            "pytest",
            "hypothesis",
        ],
    },
    zip_safe=False
)
