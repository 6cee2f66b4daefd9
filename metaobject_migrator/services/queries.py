"""
GraphQL documents used against the Admin API.

Every document carries an operation name; the shapes of the requested
fields match what the snapshot files store.
"""

FIELD_DEFINITION_FIELDS = """
        key
        name
        description
        required
        type {
          category
          name
        }
        validations {
          name
          type
          value
        }
"""

LIST_DEFINITIONS_QUERY = """
query ListDefinitions($first: Int!, $after: String) {
  metaobjectDefinitions(first: $first, after: $after) {
    nodes {
      id
      name
      type
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

DEFINITION_BY_TYPE_QUERY = """
query DefinitionByType($type: String!) {
  metaobjectDefinitionByType(type: $type) {
    id
    name
    type
    description
    fieldDefinitions {
%s
    }
    metaobjectsCount
  }
}
""" % FIELD_DEFINITION_FIELDS

METAOBJECTS_BY_TYPE_QUERY = """
query MetaobjectsByType($type: String!, $first: Int!, $after: String) {
  metaobjects(type: $type, first: $first, after: $after) {
    nodes {
      id
      handle
      type
      displayName
      capabilities {
        publishable {
          status
        }
      }
      fields {
        key
        value
        type
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

# Point lookups used by the reference resolver

DEFINITION_TYPE_BY_ID_QUERY = """
query DefinitionTypeById($id: ID!) {
  metaobjectDefinition(id: $id) {
    type
  }
}
"""

DEFINITION_ID_BY_TYPE_QUERY = """
query DefinitionIdByType($type: String!) {
  metaobjectDefinitionByType(type: $type) {
    id
  }
}
"""

PRODUCT_HANDLE_BY_ID_QUERY = """
query ProductHandleById($id: ID!) {
  product(id: $id) {
    handle
  }
}
"""

PRODUCT_ID_BY_HANDLE_QUERY = """
query ProductIdByHandle($handle: String!) {
  productByHandle(handle: $handle) {
    id
  }
}
"""

COLLECTION_HANDLE_BY_ID_QUERY = """
query CollectionHandleById($id: ID!) {
  collection(id: $id) {
    handle
  }
}
"""

COLLECTION_ID_BY_HANDLE_QUERY = """
query CollectionIdByHandle($handle: String!) {
  collectionByHandle(handle: $handle) {
    id
  }
}
"""

FILE_ALT_BY_ID_QUERY = """
query FileAltById($id: ID!) {
  node(id: $id) {
    ... on File {
      alt
    }
  }
}
"""

FILE_ID_BY_ALT_QUERY = """
query FileIdByAlt($query: String!) {
  files(first: 1, query: $query) {
    edges {
      node {
        id
      }
    }
  }
}
"""

# Mutations

CREATE_DEFINITION_MUTATION = """
mutation CreateDefinition($definition: MetaobjectDefinitionCreateInput!) {
  metaobjectDefinitionCreate(definition: $definition) {
    metaobjectDefinition {
      id
      name
      type
      fieldDefinitions {
        key
      }
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

UPDATE_DEFINITION_MUTATION = """
mutation UpdateDefinition($id: ID!, $definition: MetaobjectDefinitionUpdateInput!) {
  metaobjectDefinitionUpdate(id: $id, definition: $definition) {
    metaobjectDefinition {
      id
      type
      fieldDefinitions {
        key
      }
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

UPSERT_METAOBJECT_MUTATION = """
mutation UpsertMetaobject($handle: MetaobjectHandleInput!, $metaobject: MetaobjectUpsertInput!) {
  metaobjectUpsert(handle: $handle, metaobject: $metaobject) {
    metaobject {
      id
      handle
      fields {
        key
        value
      }
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""
