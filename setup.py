from setuptools import setup, find_packages

setup(
    name='avatar_sync_sdk',
    version='0.1.0',
    packages=find_packages(include=['avatar_sync_sdk', 'avatar_sync_sdk.*']),
    package_data={
        'avatar_sync_sdk': ['retargeter/rig_configs/*.json', 'retargeter/face_configs/*.json'],
    },
    python_requires='>=3.9',
    install_requires=[
        'numpy',
        'scipy>=1.14',
    ],
    extras_require={
        'examples': ['loop-rate-limiters'],
        'test': ['pytest>=7.0.0'],
    },
)
