from setuptools import setup, find_packages


def get_env_var(name, default=None):
    if not name:
        return False
    with open("volumectl_core/env_var", "r", encoding="utf-8") as fh:
        lines = fh.readlines()
    data = {}
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        data[k.strip()] = v.strip()
    return data.get(name, default)


def get_long_description():
    with open("README.md", "r", encoding="utf-8") as fh:
        return fh.read()


def get_requirements():
    with open("requirements.txt", "r", encoding="utf-8") as fh:
        return [line.strip() for line in fh.readlines() if line.strip()]


COMMAND_NAME = get_env_var("VOLUMECTL_COMMAND_NAME", "volumectl")
VERSION = get_env_var("VOLUMECTL_VERSION", "1")


setup(
    name=COMMAND_NAME,
    version=VERSION,
    python_requires='>=3.9',
    packages=find_packages(exclude=["*.test", "*.tests"]),
    description='CLI for managing volumes, storage profiles and backups of a local volume service',
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    install_requires=get_requirements(),
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            f'{COMMAND_NAME}=volumectl_cli.cli:main',
        ]
    },
    include_package_data=True,
    package_data={
        'volumectl_core': ["env_var"],
    },
)
