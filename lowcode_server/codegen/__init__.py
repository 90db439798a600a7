"""
Plugin-driven code generator.

Resource models (entities, module containers and actions) are turned into a
.NET service. Every generation step is an event whose parameters plugins may
rewrite before the default generator runs and whose output modules plugins
may rewrite afterwards.
"""
