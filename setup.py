from setuptools import find_packages, setup

setup(
    name='avl-comms',
    version='1.0.0',
    description='Binary packet protocol and vehicle link for AVL ground stations',
    author='avl',
    author_email='',
    packages=find_packages(include=['avlcomms', 'avlcomms.*']),
    python_requires='>=3.11',
    install_requires=[
        'construct',
        'msgspec',
        'marshmallow',
        'prometheus-client',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'avl-packet-debug=avlcomms.tools.packet_debug:main',
        ],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
)
